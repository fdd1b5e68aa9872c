import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from quart import Quart, request, jsonify
from quart_cors import cors

from config import load_settings, setup_logging
from errors import VehicleAPIError
from rate_limiter import rate_limit
from utils import to_vehicle_form
from vehicle_api import VehicleLookup

setup_logging()
logger = logging.getLogger(__name__)

settings = load_settings()

app = Quart(__name__)
origins = settings.cors_allow_origin
app = cors(app, allow_origin='*' if origins == ['*'] else origins)

# Lookups block on upstream HTTP, so they run off the event loop.
executor = ThreadPoolExecutor(max_workers=settings.workers)

vehicle_lookup = VehicleLookup()


@app.route('/api/health', methods=['GET'])
async def health():
    return jsonify({"ok": True})


@app.route('/lookup/<vrm>', methods=['GET'])
@app.route('/api/dvla/<vrm>', methods=['GET'])
@rate_limit
async def lookup(vrm):
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(executor, vehicle_lookup.lookup, vrm)
    except VehicleAPIError:
        raise
    except Exception:
        logger.exception("Unexpected error looking up %r", vrm)
        return jsonify({"error": "An unexpected error occurred"}), 500

    if request.args.get('view') == 'form':
        return jsonify(to_vehicle_form(result))
    return jsonify(result)


@app.errorhandler(VehicleAPIError)
async def handle_vehicle_api_error(error):
    return jsonify(error.to_dict()), error.status_code


if __name__ == '__main__':
    app.run(debug=True, host="127.0.0.1", port=5174)
