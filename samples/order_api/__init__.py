"""Order API sample: create, fetch and list orders."""
