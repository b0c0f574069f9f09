from flightclub.cli import app

app(prog_name="flightclub")
