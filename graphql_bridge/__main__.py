"""Allow ``python -m graphql_bridge``."""

from graphql_bridge.cli import main

if __name__ == "__main__":
    main()
