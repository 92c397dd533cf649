from convergecheck.cli import app

app()
