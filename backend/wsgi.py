# backend/wsgi.py
from partshop import create_app

app = create_app()
