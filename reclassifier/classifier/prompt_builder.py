# reclassifier/classifier/prompt_builder.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional, Sequence

from reclassifier.data_models import Product, ResolvedCategory


PROMPT_SYSTEM_INSTRUCTIONS = (
    "Eres un asistente especializado en categorización de productos. "
    "Responde siempre con solo el ID de la categoría, sin explicaciones adicionales."
)


PROMPT_INSTRUCTIONS = """
INSTRUCCIONES:
1. Analiza el nombre, descripción, marca y atributos del producto
2. Identifica la categoría MÁS ESPECÍFICA y APROPIADA de la lista
3. Si el producto encaja mejor en una subcategoría, elige esa en lugar de la categoría padre
4. Responde SOLO con el ID de la categoría elegida, sin texto adicional

RESPUESTA (solo el ID de la categoría):
""".strip()


@dataclass
class PromptBuilder:
    """
    Строитель промпта для классификации одного товара.
    """

    def build_categories_block(self, categories: Sequence[ResolvedCategory]) -> str:
        """
        Список категорий с отступом по уровню иерархии.
        """
        lines = []
        for cat in categories:
            indent = "  " * max(cat.level, 0)
            parent_info = f" (hijo de {cat.parent})" if cat.parent else ""
            lines.append(
                f"{indent}- {cat.name} (ID: {cat.id}, Nivel: {cat.level}, Slug: {cat.slug}){parent_info}"
            )
        return "\n".join(lines)

    def build_product_block(
        self, product: Product, current_category: Optional[ResolvedCategory] = None
    ) -> str:
        info = {
            "nombre": product.name,
            "sku": product.sku,
            "marca": product.brand or "No especificada",
            "descripción": product.description or "Sin descripción",
            "atributos": [{"name": a.name, "value": a.value} for a in product.attributes],
            "categoría_actual": current_category.name if current_category else "Sin categoría",
        }
        return json.dumps(info, ensure_ascii=False, indent=2)

    def build_user_prompt(
        self,
        product: Product,
        categories: Sequence[ResolvedCategory],
        current_category: Optional[ResolvedCategory] = None,
    ) -> str:
        """
        Основной текст запроса (user message) к модели.
        """
        prompt = f"""
Eres un experto en categorización de productos. Analiza el siguiente producto y determina cuál es la categoría más apropiada de la lista proporcionada.

INFORMACIÓN DEL PRODUCTO:
{self.build_product_block(product, current_category)}

CATEGORÍAS DISPONIBLES:
{self.build_categories_block(categories)}

{PROMPT_INSTRUCTIONS}
""".strip()

        return prompt
