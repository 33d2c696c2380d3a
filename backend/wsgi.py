# backend/wsgi.py
from posx import create_app

app = create_app()
