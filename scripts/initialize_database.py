import os
import sys

# Adiciona o diretório raiz do projeto ao sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.migrators.ghost_store import SCHEMA, GhostStore

# Define o caminho para o banco de dados
db_path = os.getenv('GHOST_DB_PATH', 'data/ghost.duckdb')


def initialize_database():
    """
    Inicializa o banco de dados DuckDB com as tabelas do Ghost usadas
    pela importação de posts. Tabelas existentes não são alteradas.
    """
    # Garante que o diretório de dados exista
    os.makedirs(os.path.dirname(db_path) or '.', exist_ok=True)

    store = GhostStore.connect(db_path)
    try:
        missing = store.missing_tables()
        if not missing:
            print("Todas as tabelas já existem. Nenhuma ação foi tomada.")
            return

        print(f"Criando tabelas: {', '.join(missing)}")
        store.create_schema()
        print(f"Esquema criado com sucesso em '{db_path}' ({len(SCHEMA)} tabelas).")

    except Exception as e:
        print(f"Ocorreu um erro: {e}")
    finally:
        store.close()
        print("Conexão com o banco de dados fechada.")


if __name__ == "__main__":
    initialize_database()
