from colloquy.cli import app

app()
