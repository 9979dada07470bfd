from setuptools import setup, find_packages


install_requires = [
    'botocore>=1.12.54',
    'blinker>=1.3,<2.0',
]

setup(
    name='dynamap',
    version=__import__('dynamap').__version__,
    packages=find_packages(exclude=('tests',)),
    author='dynamap contributors',
    description='An object-document mapper for Amazon DynamoDB',
    long_description=open('README.rst').read(),
    long_description_content_type='text/x-rst',
    zip_safe=False,
    license='MIT',
    keywords='python dynamodb amazon odm',
    python_requires=">=3.7",
    install_requires=install_requires,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Programming Language :: Python',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3.7',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'License :: OSI Approved :: MIT License',
    ],
    extras_require={
        'tests': ['pytest>=6', 'pytest-mock'],
    },
    package_data={'dynamap': ['py.typed']},
)
