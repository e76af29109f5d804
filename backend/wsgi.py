# backend/wsgi.py
from order_tracker import create_app

app = create_app()
