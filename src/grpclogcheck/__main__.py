from grpclogcheck.cli import main

main()
