"""Session, scheduler, player and command-line entry point."""
