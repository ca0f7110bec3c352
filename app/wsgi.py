from app.clearbroker import create_app

app = create_app()
