from app import app, db

# This script deletes the old database and creates a fresh one
# matching the current models. Every reservation is lost.
with app.app_context():
    db.drop_all()   # Deletes everything
    db.create_all() # Creates fresh tables
    print("✅ Database has been reset! Run seed_db.py to add item types.")
