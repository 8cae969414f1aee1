"""Base command class for shared CLI setup/teardown."""

from sqlalchemy.orm import sessionmaker

from huegallery.database import build_engine


class CliCommand:
    """Base class for all CLI commands with shared setup/teardown."""

    def __init__(self):
        self.engine = None
        self.Session = None
        self.db = None

    def setup_db(self):
        """Initialize database connection."""
        self.engine = build_engine()
        self.Session = sessionmaker(bind=self.engine)
        self.db = self.Session()

    def cleanup_db(self):
        """Close database connection."""
        if self.db:
            self.db.close()
        if self.engine:
            self.engine.dispose()

    def run(self):
        """Execute the command inside a managed database session."""
        self.setup_db()
        try:
            self.execute()
        finally:
            self.cleanup_db()

    def execute(self):
        raise NotImplementedError
