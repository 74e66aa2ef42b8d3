from subcrawl.main import cli

cli()
