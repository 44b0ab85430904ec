from setuptools import setup, find_packages


with open('README.md') as f:
    readme = f.read()

setup(
    name='ingress-conformance',
    version='0.1.0',
    description='Eventually-consistent verification engine for Kubernetes ingress (HAProxy router) conformance tests',
    long_description=readme,
    long_description_content_type='text/markdown',
    author='',
    author_email='',
    url='',
    package_dir={'': 'src'},
    packages=find_packages('src', exclude=('tests', 'docs')),
    package_data={'conformance': ['templates/*.j2']},
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'jinja2',
        'pyyaml',
        'kubernetes',
        'urllib3',
        'requests',
        'deepdiff',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
