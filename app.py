"""WSGI entry point: ``gunicorn app:app`` or ``flask --app app run``."""
from ellarises import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=app.config.get('DEBUG', False))
