from .cli import app

app(prog_name="red-green-refactor")
