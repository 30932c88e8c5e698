"""Admin console session layer: credentials, bootstrap, gate and guards."""
