from app.tourcms import create_app

app = create_app()
