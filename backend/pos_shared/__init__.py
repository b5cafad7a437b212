"""Configuration, infrastructure, security and schemas shared by the POS services."""
