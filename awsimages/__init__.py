"""
awsimages - 여러 AWS 리전의 AMI를 하나의 뷰로 조회/변경

Usage:
    from awsimages.config import load_config
    from awsimages.provider import AwsImages

    images = AwsImages(load_config(region="all"))
    result = images.owner_images()
"""

__version__ = "0.1.0"
