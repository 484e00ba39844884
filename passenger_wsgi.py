"""
Passenger WSGI file for cPanel deployment.
This file is used by the Passenger application server.
"""
import os
import sys
from pathlib import Path

# Get the directory containing this file
BASE_DIR = Path(__file__).resolve().parent

# Add the project directory to Python path
sys.path.insert(0, str(BASE_DIR))

# Deployment secrets (VAPID_*, RESEND_API_KEY, DJANGO_SECRET_KEY) come from the
# cPanel environment; generate push keys with: python manage.py generate_vapid_keys
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

from config.wsgi import application  # noqa: E402,F401
