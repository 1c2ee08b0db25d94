from resloc.cli import main

main()
