from sightread.cli import main

main()
