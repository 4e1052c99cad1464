"""Allow running as: python -m ipban <config.yaml>"""

from .cli import main

main()
