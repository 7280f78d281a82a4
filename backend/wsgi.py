# backend/wsgi.py
from freshguard import create_app

app = create_app()
