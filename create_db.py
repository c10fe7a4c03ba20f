from tuition import app, db, bootstrap_admin

with app.app_context():
    db.create_all()
    # Creates ADMIN_USERNAME with ADMIN_PASSWORD(_HASH) when set
    bootstrap_admin()
    print(f"Tables ready at {app.config['SQLALCHEMY_DATABASE_URI']}")
