"""SQLite storage for projects, integrations, check configs and incidents."""