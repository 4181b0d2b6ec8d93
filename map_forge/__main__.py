from map_forge.cli.main import cli

cli()
