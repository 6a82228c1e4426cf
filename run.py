"""Ponto de entrada WSGI para o Economize.

Expõe a variável ``application`` que o servidor (Gunicorn/uWSGI/EB) procura.
"""
import os

from application import create_app

# Instância global usada por WSGI/Gunicorn/Elastic Beanstalk
application = create_app()

# Alias para compatibilidade com código que usa "app"
app = application


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    application.run(debug=True, host="0.0.0.0", port=port)
