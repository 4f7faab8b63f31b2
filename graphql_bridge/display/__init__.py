"""Display subpackage - logging setup."""
