from showast.cli import main

main()
