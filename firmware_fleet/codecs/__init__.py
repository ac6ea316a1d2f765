"""Wire codecs for the inventory and scheduling services."""
