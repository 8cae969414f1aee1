"""Database schema command."""

import click

from huegallery.metadata import Base
from huegallery.cli.base import CliCommand


@click.command(name='init-db')
@click.option('--drop', is_flag=True, help='Drop existing gallery tables first')
def init_db_command(drop: bool):
    """Create the gallery tables in the configured database."""
    cmd = InitDbCommand(drop)
    cmd.run()


class InitDbCommand(CliCommand):
    """Command to create (or recreate) the gallery schema."""

    def __init__(self, drop: bool):
        super().__init__()
        self.drop = drop

    def execute(self):
        if self.drop:
            Base.metadata.drop_all(self.engine)
            click.echo("Dropped gallery tables")
        Base.metadata.create_all(self.engine)
        click.echo(f"Created {len(Base.metadata.tables)} tables")
