"""StaySync — calendar reconciliation and availability service."""
