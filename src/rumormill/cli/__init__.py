"""rumormill CLI package."""
