"""Foundation: value types, configuration and testing fakes."""
