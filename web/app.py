"""Simple Flask JSON API over a published Salesforce object catalog."""

import os

from flask import Flask, request, jsonify

from sf_catalog.datasource import LocalDataSource

app = Flask(__name__)

# Configuration
app.config['CATALOG_DIR'] = os.environ.get('SF_CATALOG_DIR', 'doc')


def get_datasource() -> LocalDataSource:
    """Data source for the configured catalog directory."""
    return LocalDataSource(app.config['CATALOG_DIR'])


@app.errorhandler(FileNotFoundError)
def not_found(e):
    return jsonify({'error': str(e)}), 404


@app.route('/api/index')
def get_index():
    """The full Global Index."""
    return jsonify(get_datasource().index())


@app.route('/api/clouds')
def list_clouds():
    """Cloud summaries, keyed by file key."""
    return jsonify(get_datasource().clouds())


@app.route('/api/clouds/<key>')
def get_cloud(key: str):
    return jsonify(get_datasource().cloud(key))


@app.route('/api/objects/<name>')
def get_object(name: str):
    return jsonify(get_datasource().get_object(name))


@app.route('/api/search')
def search():
    """Search objects by name or label."""
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({'error': 'No query provided'}), 400
    cloud = request.args.get('cloud')
    limit = request.args.get('limit', 50, type=int)
    return jsonify(get_datasource().search(query, cloud=cloud, limit=limit))


if __name__ == '__main__':
    app.run(debug=True, port=5002)
