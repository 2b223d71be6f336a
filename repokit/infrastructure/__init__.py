"""Infrastructure layer: database wiring and the SQLAlchemy persistence package."""
