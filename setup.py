from setuptools import setup, find_packages

setup(name='pledge',
      version='0.1.0',
      description='Deferred values with ordered continuations, combinators, and a sequential async/await view',
      classifiers=[
          "Programming Language :: Python :: 3",
          "License :: OSI Approved :: MIT License",
          "Framework :: Trio",
      ],
      keywords='future promise deferred continuation async trio',
      license='MIT',
      python_requires='>=3.11',
      install_requires=[
          'outcome>=1.3',
          'trio>=0.23',
      ],
      packages=find_packages(),
      include_package_data=True,
)
