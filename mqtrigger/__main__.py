from mqtrigger.cli import cli

cli()
