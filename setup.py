from setuptools import setup, find_packages

setup(
    name="photo_enhance_ai",
    version="1.0.0",
    packages=find_packages(exclude=['tests', 'tests.*', 'scripts']),
    py_modules=['app', 'server'],
    install_requires=[
        'streamlit>=1.30',
        'streamlit-cookies-manager>=0.2.0',
        'firebase-admin',
        'pyrebase4',
        'stripe>=8.0',
        'openai>=1.0',
        'flask',
        'Pillow',
        'pydantic>=2.0',
        'python-dotenv',
        'requests'
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx'
        ]
    },
)
