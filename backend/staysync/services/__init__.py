"""Business services orchestrating the calendar engine against the store."""
