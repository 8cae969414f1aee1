"""Inspection commands (list images and artists)."""

from typing import Optional

import click

from huegallery.cli.base import CliCommand
from huegallery.listing import ListingError, ListingService
from huegallery.query_codec import decode


@click.command(name='list-images')
@click.option('--query', 'query', default='', help='Gallery URL query string, e.g. "artist=ana&h_min=350&h_max=10"')
@click.option('--page', default=None, type=int, help='Page number (overrides the query)')
@click.option('--page-size', default=10, type=int, help='Number of images to list')
def list_images_command(query: str, page: Optional[int], page_size: int):
    """List images matching a gallery query string."""
    cmd = ListImagesCommand(query, page, page_size)
    cmd.run()


@click.command(name='list-artists')
def list_artists_command():
    """List distinct artists that have images."""
    cmd = ListArtistsCommand()
    cmd.run()


class ListImagesCommand(CliCommand):
    """Command to list images."""

    def __init__(self, query: str, page: Optional[int], page_size: int):
        super().__init__()
        self.query = query
        self.page = page
        self.page_size = page_size

    def execute(self):
        filters = decode(self.query)
        service = ListingService(self.db)
        try:
            result = service.list(filters, page=self.page, page_size=self.page_size)
        except ListingError as exc:
            raise click.ClickException(str(exc))

        click.echo(f"\nImages for ?{result.query}")
        click.echo("-" * 80)

        for img in result.items:
            artist = img.post.username if img.post else "?"
            click.echo(f"ID: {img.id}")
            click.echo(f"  File: {img.relative_file_path}")
            click.echo(f"  Artist: {artist}")
            if img.width and img.height:
                click.echo(f"  Size: {img.width}x{img.height}")
            if img.luminance is not None:
                click.echo(f"  Mean luminance: {img.luminance.mean_luminance}")
            click.echo()

        click.echo(f"Total: {result.total_count} images (page {result.page})")


class ListArtistsCommand(CliCommand):
    """Command to list artists."""

    def execute(self):
        try:
            artists = ListingService(self.db).list_artists()
        except ListingError as exc:
            raise click.ClickException(str(exc))
        for name in artists:
            click.echo(name)
        click.echo(f"Total: {len(artists)} artists")
