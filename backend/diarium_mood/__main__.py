from diarium_mood.cli import app

app()
