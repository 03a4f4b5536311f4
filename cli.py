"""Run the Body Tracker CLI from a source checkout: python cli.py <command>

Installed copies use the body-tracker console script instead.
"""

from cli.main import main

if __name__ == "__main__":
    main()
