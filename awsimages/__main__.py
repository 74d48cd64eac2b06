"""python -m awsimages 진입점"""

from awsimages.cli.app import main

if __name__ == "__main__":
    main()
