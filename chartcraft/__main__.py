from chartcraft.cli import main

main()
