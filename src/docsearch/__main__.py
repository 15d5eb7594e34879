from docsearch.cli.main import app

app(prog_name="docsearch")
