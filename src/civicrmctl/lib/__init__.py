"""Service layer for civicrmctl: config, site discovery, database, CiviCRM runtime."""
