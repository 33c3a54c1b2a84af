"""Database layer: connection management, ORM tables, ledgers and stores."""
