from medianstack.app import cli

cli()
