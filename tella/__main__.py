"""
This allows tella to be run as a module with `python -m tella`.
"""
from dotenv import load_dotenv
load_dotenv()

from .main import main

if __name__ == "__main__":
    main()
