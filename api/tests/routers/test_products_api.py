from distribution_hub.db_models import ProductStatus


class TestProductsAPI:

    async def test_create_and_fetch(self, client):
        response = await client.post("/products", json={
            "sku": "CYL-11",
            "name": "Propane 11kg",
            "unit_of_measure": "cylinder",
            "capacity_kg": "11",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Product created successfully"

        fetched = await client.get(f"/products/{body['data']['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["sku"] == "CYL-11"

    async def test_duplicate_sku_is_409(self, client, make_product):
        await make_product("CYL-11")

        response = await client.post("/products", json={
            "sku": "CYL-11", "name": "Again", "unit_of_measure": "cylinder",
        })

        assert response.status_code == 409
        assert response.json() == {
            "detail": "SKU already exists. Please use a unique SKU.",
            "kind": "ConflictError",
        }

    async def test_bad_sku_pattern_is_422(self, client):
        response = await client.post("/products", json={
            "sku": "cyl 11", "name": "Lower", "unit_of_measure": "cylinder",
        })

        assert response.status_code == 422
        assert response.json()["kind"] == "ValidationError"

    async def test_delete_marks_obsolete_and_hides_from_list(self, client, make_product):
        product = await make_product("CYL-11")

        response = await client.delete(f"/products/{product.id}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "obsolete"

        listed = (await client.get("/products")).json()
        assert listed["total_count"] == 0
        with_obsolete = (await client.get("/products", params={"show_obsolete": "true"})).json()
        assert with_obsolete["total_count"] == 1

    async def test_obsolete_twice_is_info(self, client, make_product):
        product = await make_product("CYL-11", status=ProductStatus.obsolete)

        body = (await client.post(f"/products/{product.id}/obsolete")).json()

        assert body["noop"] is True
        assert body["level"] == "info"

    async def test_reactivate(self, client, make_product):
        product = await make_product("CYL-11", status=ProductStatus.obsolete)

        body = (await client.post(f"/products/{product.id}/reactivate")).json()

        assert body["message"] == "Product reactivated successfully"
        assert body["data"]["status"] == "active"

    async def test_bulk_status_drops_placeholders(self, client, make_product):
        a = await make_product("CYL-1")

        response = await client.post("/products/bulk-status", json={
            "ids": [a.id, "null", None], "status": "end_of_sale",
        })

        assert response.status_code == 200
        assert response.json()["message"] == "1 products updated successfully"

    async def test_bulk_status_without_valid_ids_is_422(self, client):
        response = await client.post("/products/bulk-status", json={"ids": ["undefined"], "status": "active"})

        assert response.status_code == 422
        assert response.json()["kind"] == "NoValidTargets"

    async def test_stats(self, client, make_product):
        await make_product("CYL-1")
        await make_product("CYL-2", status=ProductStatus.obsolete)

        stats = (await client.get("/products/stats")).json()

        assert stats["total"] == 1
        assert stats["obsolete"] == 1

    async def test_unknown_product_is_404(self, client):
        response = await client.get("/products/not-a-product")
        assert response.status_code == 404
