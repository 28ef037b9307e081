from record_release.cli.app import main

main()
