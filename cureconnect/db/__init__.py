# Database package: engine/session management and SQLAlchemy models
