"""Seed the database with the demo course catalog and users."""
import os
import sys
from dotenv import load_dotenv

load_dotenv()

from adventures import create_app
from adventures.extensions import db
from adventures.seed import seed_courses, seed_demo_data

app = create_app(os.environ.get('FLASK_ENV', 'development'))


if __name__ == '__main__':
    with app.app_context():
        print('Creating tables...')
        db.create_all()

        if '--demo' in sys.argv:
            seed_demo_data()
        else:
            print('Seeding courses...')
            seed_courses()
            print('Done!')
