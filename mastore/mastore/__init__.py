import os

# PyMySQL stands in for mysqlclient only when explicitly requested
if os.environ.get("MYSQL_USE_PYMYSQL") == "1":
    import pymysql
    pymysql.install_as_MySQLdb()

from .celery import app as celery_app

__all__ = ("celery_app",)
