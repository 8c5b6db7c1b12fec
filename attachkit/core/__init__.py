"""Core building blocks of attachkit."""
