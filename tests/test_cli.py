"""Tests for the huegallery CLI commands."""

from datetime import datetime

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker

from huegallery.cli import cli
from huegallery.metadata import Image, Luminance, Post
from huegallery.settings import settings


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'gallery.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    return url


def _seed(url: str):
    engine = create_engine(url)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        for index, name in enumerate(["ana", "ben"], start=1):
            post = Post(shortcode=f"SC{index}", username=name, post_date=datetime(2024, index, 1))
            session.add(post)
            session.flush()
            image = Image(
                post_id=post.id,
                filename=f"{name}.jpg",
                relative_file_path=f"{name}/{name}.jpg",
                width=800,
                height=600,
            )
            session.add(image)
            session.flush()
            session.add(Luminance(image_id=image.id, mean_luminance=30.0 * index))
        session.commit()
    finally:
        session.close()
        engine.dispose()


class TestInitDb:

    def test_creates_tables(self, database_url):
        result = CliRunner().invoke(cli, ["init-db"])
        assert result.exit_code == 0, result.output
        assert "Created 8 tables" in result.output

        engine = create_engine(database_url)
        assert "clusters" in inspect(engine).get_table_names()
        engine.dispose()

    def test_drop_and_recreate(self, database_url):
        runner = CliRunner()
        runner.invoke(cli, ["init-db"])
        result = runner.invoke(cli, ["init-db", "--drop"])
        assert result.exit_code == 0, result.output
        assert "Dropped gallery tables" in result.output


class TestListCommands:

    def test_list_images(self, database_url):
        runner = CliRunner()
        runner.invoke(cli, ["init-db"])
        _seed(database_url)

        result = runner.invoke(cli, ["list-images", "--query", "mean_luminance_min=50"])
        assert result.exit_code == 0, result.output
        assert "Artist: ben" in result.output
        assert "Artist: ana" not in result.output
        assert "Size: 800x600" in result.output
        assert "Total: 1 images (page 1)" in result.output

    def test_list_images_page_override(self, database_url):
        runner = CliRunner()
        runner.invoke(cli, ["init-db"])
        _seed(database_url)

        result = runner.invoke(cli, ["list-images", "--page", "2", "--page-size", "1"])
        assert result.exit_code == 0, result.output
        assert "Artist: ana" in result.output
        assert "Total: 2 images (page 2)" in result.output

    def test_list_images_without_schema(self, database_url):
        result = CliRunner().invoke(cli, ["list-images"])
        assert result.exit_code != 0
        assert "Failed to fetch images." in result.output

    def test_list_artists(self, database_url):
        runner = CliRunner()
        runner.invoke(cli, ["init-db"])
        _seed(database_url)

        result = runner.invoke(cli, ["list-artists"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["ana", "ben", "Total: 2 artists"]
