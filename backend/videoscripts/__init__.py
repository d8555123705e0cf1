"""VideoScripts: turns YouTube videos into clustered topics and narrative scripts."""

__version__ = "0.1.0"
