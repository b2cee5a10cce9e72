#!/usr/bin/env python3
"""Entry point for the Hello World AVS operator service.

Equivalent to the ``hello-world-operator`` console script.
"""

from hello_world_operator.cli import main

if __name__ == "__main__":
    main()
