from fig.cli import main

main()
