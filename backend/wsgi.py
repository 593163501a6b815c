# backend/wsgi.py
from carwash import create_app

app = create_app()
