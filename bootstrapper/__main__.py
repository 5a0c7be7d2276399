from bootstrapper.template import main

main()
