"""REST route blueprints."""
