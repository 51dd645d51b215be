"""Client side of tachosync: upload client, settings, session and scheduling."""
