from hr_attendance.main import create_app, serve_options

app = create_app()

if __name__ == "__main__":
    app.run(**serve_options(app))
