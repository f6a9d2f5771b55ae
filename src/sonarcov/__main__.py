from sonarcov.cli import main

main()
