"""Allow `python -m iostack` to start the interactive chat."""

from iostack.harness import main

if __name__ == "__main__":
    main()
