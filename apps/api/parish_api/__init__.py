"""Parish admin API and console authorization layer."""
