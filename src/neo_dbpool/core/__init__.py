"""Core building blocks shared by all neo-dbpool features."""
