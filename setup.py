from setuptools import setup, find_packages


setup(name='crater_counter',
      version='1.0.0',
      description='Incremental randomized Hough ellipse detection for counting craters in images',
      packages=find_packages(include=['crater_counter', 'crater_counter.*']),
      python_requires='>=3.10',
      install_requires=['numpy', 'scipy', 'opencv-python'],
      extras_require={'test': ['pytest']},
      entry_points={'console_scripts': ['count-craters=crater_counter.scripts.count_craters:main']})
